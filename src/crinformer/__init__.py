# All types a user would care about are made available in the top level package.
# A user should never have to import anything from sub modules.

from .exceptions import *  # noqa: F403 public API
from .resources import *  # noqa: F403 public API
from .watching import *  # noqa: F403 public API
from .dispatcher import *  # noqa: F403 public API
from .settings import *  # noqa: F403 public API
from .client import *  # noqa: F403 public API
from .runner import Operator

# Singleton operator instance.
operator = Operator()

# Easy access to start the operator.
run = operator.run

# Easy access to the handler decorator.
on_event = operator.on_event
