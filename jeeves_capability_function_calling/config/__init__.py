from jeeves_capability_function_calling.config.settings import FunctionCallingSettings

__all__ = ["FunctionCallingSettings"]
