# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

'''
Rebuilder: a minimal incremental build tool.
A build script defines named targets with prerequisites and actions;
only targets older than their prerequisites (by file modification time) are rebuilt.
'''

import sys
assert sys.version_info.major == 3 # python 2 is not supported.

from .builder import Builder, out_of_date_reason
from .ctx import (ActionError, BuildContext, BuildError, CircularDependency, Dpdt, PathTarget, StatError, Target,
  TargetNotFound)
from .logging import NULL_LOGGER, Logger
from .registry import TargetRegistry
from .subproc import ExternalProcessRunner, ProcessError


# module exports.
__all__ = [
  'ActionError',
  'BuildContext',
  'BuildError',
  'Builder',
  'CircularDependency',
  'Dpdt',
  'ExternalProcessRunner',
  'Logger',
  'NULL_LOGGER',
  'PathTarget',
  'ProcessError',
  'StatError',
  'Target',
  'TargetNotFound',
  'TargetRegistry',
  'out_of_date_reason',
]
