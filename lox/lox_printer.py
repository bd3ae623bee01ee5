"""
A printer for Lox runtime values.
"""
from lox.lox_datatypes import LoxFunction, NativeFunction, LoxClass, LoxInstance


class Printer:
    """Formats Lox values the way `print` shows them to users."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj)

    def _get_handler(self, obj):
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        # Subclasses of the runtime types format like their base
        for base in (LoxFunction, NativeFunction, LoxClass, LoxInstance):
            if isinstance(obj, base):
                return self._handlers[base]
        return repr

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_number,
            float: self._pformat_number,
            bool: self._pformat_bool,
            type(None): self._pformat_nil,
            LoxFunction: self._pformat_function,
            NativeFunction: self._pformat_native,
            LoxClass: self._pformat_class,
            LoxInstance: self._pformat_instance,
        }

    def _pformat_str(self, obj):
        return obj

    def _pformat_number(self, obj):
        if isinstance(obj, float) and obj.is_integer():
            return str(int(obj))
        return str(obj)

    def _pformat_bool(self, obj):
        return 'true' if obj else 'false'

    def _pformat_nil(self, obj):
        return 'nil'

    def _pformat_function(self, obj):
        return f"<fn {obj.name}>"

    def _pformat_native(self, obj):
        return "<native fn>"

    def _pformat_class(self, obj):
        return obj.name

    def _pformat_instance(self, obj):
        return str(obj)
