# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

from typing import Any

from pithy.ansi import RST_ERR, TXT_L_ERR, TXT_Y_ERR
from pithy.io import errL

from .constants import *


def note(path:str, *items:Any) -> None:
  errL(TXT_L_ERR, f'rebuilder note: {path}: ', *items, RST_ERR)

def warn(path:str, *items:Any) -> None:
  errL(TXT_Y_ERR, f'rebuilder WARNING: {path}: ', *items, RST_ERR)

def error(path:str, *items:Any) -> None:
  errL(TXT_Y_ERR, error_msg(path, *items), RST_ERR)

def dbg(path:str, *items:Any) -> None:
  errL('rebuilder dbg: ', path, ': ', *items)

def error_msg(path:str, *msg:Any) -> str:
  return f'rebuilder error: {path}: ' + ''.join(str(m) for m in msg)


class Logger:
  '''
  Verbosity-filtered logger.
  Messages at or below `verbosity` are written to stderr; everything else is dropped.
  '''

  def __init__(self, verbosity:int=default_verbosity) -> None:
    self.verbosity = verbosity

  def __repr__(self) -> str:
    return f'Logger(verbosity={self.verbosity})'

  def error(self, path:str, *items:Any) -> None:
    if self.verbosity >= VERBOSITY_ERRORS: error(path, *items)

  def warn(self, path:str, *items:Any) -> None:
    if self.verbosity >= VERBOSITY_WARNINGS: warn(path, *items)

  def note(self, path:str, *items:Any) -> None:
    if self.verbosity >= VERBOSITY_INFO: note(path, *items)

  def dbg(self, path:str, *items:Any) -> None:
    if self.verbosity >= VERBOSITY_DEBUG: dbg(path, *items)


NULL_LOGGER = Logger(verbosity=VERBOSITY_SILENT)
