"""
Imports every subpackage of antplan so that all classes decorated with
cli_register are available on the command line.
"""
import importlib
import pkgutil

import antplan


def import_submodules(package):
    """Import all submodules under a package."""
    if isinstance(package, str):
        package = importlib.import_module(package)
    results = {}
    for loader, name, is_pkg in pkgutil.walk_packages(package.__path__, package.__name__ + "."):
        if name.endswith("_test"):
            continue
        results[name] = importlib.import_module(name)
    return results


def discover():
    for loader, name, is_pkg in pkgutil.walk_packages(antplan.__path__, antplan.__name__ + "."):
        if is_pkg and name != "antplan.oracles":
            import_submodules(name)


discover()
