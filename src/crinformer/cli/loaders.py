"""
Module- and file-loading to trigger the event handler to be registered.

The event handler is registered with a decorator, so the file or module
defining it has to be loaded before the operator can run.

The files/modules to be loaded are specified on the command-line.
Two loading modes are supported, both are equivalent to Python CLI:

* Plain files (`crinformer run handlers.py`).
* Importable modules (`crinformer run -m pkg.mod`).

Multiple files/modules can be specified. They will be loaded in the order.
"""

import importlib
import importlib.abc
import importlib.util
import logging
import os.path
import sys
from typing import Iterable, cast


log = logging.getLogger(__name__)


def preload(
    paths: Iterable[str] = None,
    modules: Iterable[str] = None,
) -> None:
    """
    Ensure the handlers are registered by loading/importing the files/modules.
    """

    if paths is not None:
        for idx, path in enumerate(paths):
            log.debug('loading %s', path)
            sys.path.insert(0, os.path.abspath(os.path.dirname(path)))
            name = f'__crinformer_script_{idx}__{path}'  # same pseudo-name as '__main__'
            spec = importlib.util.spec_from_file_location(name, path)
            module = importlib.util.module_from_spec(spec) if spec is not None else None
            loader = (
                cast(importlib.abc.Loader, spec.loader) if spec is not None else None
            )
            if module is not None and loader is not None:
                sys.modules[name] = module
                loader.exec_module(module)
            else:
                raise ImportError(f'Failed loading {path}: no module or loader.')

    if modules is not None:
        for name in modules:
            log.debug('importing %s', name)
            importlib.import_module(name)
