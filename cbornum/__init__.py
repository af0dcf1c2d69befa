from .context import *
from .bigfloat import *
from .rational import *
from .adapters import *
from .number import *
from .tags import *

from . import context, bigfloat, decimals, rational, adapters, number, tags

__all__ = (context.__all__ + bigfloat.__all__ + rational.__all__ + adapters.__all__
           + number.__all__ + tags.__all__ + ('decimals', ))

__version__ = '0.1.0'
