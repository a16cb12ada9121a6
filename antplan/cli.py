import argparse
from typing import Dict, List, Optional


_cli_register: Dict[str, "CLIClassWrapper"] = {}


class CLIClassConstructor:
    """
    A registered class with some of its constructor arguments bound. Calling it
    with the task creates the instance.
    """

    def __init__(self, cls, *args, **kwargs):
        self.cls = cls
        # Arguments given as bare class names are instantiated with no further arguments
        self.cli_args = tuple(o() if isinstance(o, CLIClassWrapper) else o for o in args)
        self.cli_kwargs = {k: (v() if isinstance(v, CLIClassWrapper) else v) for k, v in kwargs.items()}

    def __call__(self, *args, **kwargs):
        return self.cls(*args, *self.cli_args, **kwargs, **self.cli_kwargs)

    def __repr__(self):
        arguments = [repr(a) for a in self.cli_args] + [f"{k}={v!r}" for k, v in self.cli_kwargs.items()]
        return f"{self.cls.__name__}({', '.join(arguments)})"


class CLIClassWrapper:
    def __init__(self, cls):
        self.cls = cls

    def __call__(self, *args, **kwargs):
        return CLIClassConstructor(self.cls, *args, **kwargs)


def cli_register(cli_alias: Optional[str] = None):
    """
    A decorator to register a class for use in command line expressions.
    """
    if cli_alias is not None and not isinstance(cli_alias, str):
        raise ValueError("Looks like you forgot the parentheses on @cli_register()")

    def decorator(cls):
        assert cls.__name__ not in _cli_register, f"Class {cls.__name__} is already registered."
        _cli_register[cls.__name__] = CLIClassWrapper(cls)
        if cli_alias is not None:
            assert cli_alias not in _cli_register, f"CLI alias {cli_alias} is already registered."
            _cli_register[cli_alias] = CLIClassWrapper(cls)
        return cls

    return decorator


def registered_names(base: type) -> List[str]:
    """All registered names (class names and aliases) of subclasses of base."""
    return sorted(name for name, wrapper in _cli_register.items() if issubclass(wrapper.cls, base))


def cli_constructor(expected_type: type, allow_none: bool = True):
    """
    This function returns a function that constructs the object specified by the command line argument.

    The argument is a string, e.g. "gbfs(heuristic=hantplan(module='my_oracles', combine='add'))"
    We then evaluate this string as a python expression over the registered names.
    """

    def constructor(arg: str):
        try:
            obj = eval(arg, {"__builtins__": {}}, _cli_register)  # type: ignore
        except NameError as e:
            raise argparse.ArgumentTypeError(f"Unknown name {e.name}, available names: {registered_names(object)}")
        except Exception as e:
            raise argparse.ArgumentTypeError(f"Could not parse argument: {arg}, error {e}")
        if obj is None:
            if allow_none:
                return None
            else:
                raise argparse.ArgumentTypeError(f"Expected type {expected_type.__name__}, got None")
        if isinstance(obj, CLIClassWrapper):
            # The class itself was given, so we need to instantiate it without arguments
            obj = obj()
        if not isinstance(obj, CLIClassConstructor):
            raise argparse.ArgumentTypeError(f"Expected type {expected_type.__name__}, got {type(obj).__name__}")

        # Check that it is of the expected type
        if not issubclass(obj.cls, expected_type):
            raise argparse.ArgumentTypeError(f"Expected type {expected_type.__name__}, got {obj.cls.__name__}")
        return obj

    return constructor
