"""telgate: a TCP to Telnet protocol gateway implemented in python."""
# pylint: disable=wildcard-import,undefined-variable
from .server import *           # noqa
from .registry import *         # noqa
from .bridge import *           # noqa
from .negotiation import *      # noqa
from .client import *           # noqa
from .stream_reader import *    # noqa
from .encoding import *         # noqa
from .telopt import *           # noqa
from .accessories import get_version as __get_version

__all__ = (
    server.__all__ +
    registry.__all__ +
    bridge.__all__ +
    negotiation.__all__ +
    client.__all__ +
    stream_reader.__all__ +
    encoding.__all__ +
    telopt.__all__
)  # noqa

__license__ = 'ISC'
__version__ = __get_version()
