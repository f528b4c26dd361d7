# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

'''
External process execution for build actions.
'''

import sys
from asyncio import Future, create_subprocess_exec, ensure_future
from asyncio.subprocess import DEVNULL
from shlex import quote as sh_quote
from typing import List, Optional, Sequence, Union

from .logging import NULL_LOGGER, Logger


Cmd = Union[str, Sequence[str]]

shell_alternatives = (('sh', '-c'), ('cmd.exe', '/c'))
if sys.platform == 'win32':
  shell_alternatives = shell_alternatives[::-1]


class ProcessError(Exception):
  def __init__(self, msg:str, code:Optional[int]=None) -> None:
    super().__init__(msg)
    self.code = code


def args_to_shell_command(args:Cmd) -> str:
  '''
  Render `args` as a shell command, for display to humans.
  Do not pass the result to an actual shell.
  '''
  if isinstance(args, str): return args
  return ' '.join(sh_quote(a) for a in args)


class ExternalProcessRunner:

  def __init__(self, logger:Logger=NULL_LOGGER) -> None:
    self.logger = logger
    self._shell_cmd:Optional[Future] = None

  async def do_cmd(self, args:Cmd, silent:bool=False, cwd:Optional[str]=None, on_nz:str='error') -> int:
    '''
    Run a command and return its exit code.
    A string command is run by the shell detected with `figure_shell_command`.
    If `silent`, output is discarded; otherwise it is inherited from this process.
    `on_nz` selects what happens when the exit code is nonzero: 'error' raises `ProcessError`; 'return' returns the code.
    '''
    if on_nz not in ('error', 'return'): raise ValueError(f'invalid on_nz: {on_nz!r}')
    argv = await self.process_cmd(args)
    cmd_str = args_to_shell_command(argv)
    self.logger.note('+', cmd_str)
    out = DEVNULL if silent else None
    try:
      proc = await create_subprocess_exec(*argv, cwd=cwd, stdin=DEVNULL, stdout=out, stderr=out)
    except OSError as e:
      raise ProcessError(f'failed to run: {cmd_str}: {e}') from e
    code = await proc.wait()
    if code != 0 and on_nz == 'error':
      raise ProcessError(f'process exited with code {code}: {cmd_str}', code=code)
    return code

  async def process_cmd(self, args:Cmd) -> List[str]:
    if isinstance(args, str):
      return [*await self.figure_shell_command(), args]
    return list(args)

  async def find_working_program(self, alternatives:Sequence[Sequence[str]], test_postfix:Sequence[str], name='a program') \
   -> List[str]:
    'Return the first of `alternatives` that exits successfully when run with `test_postfix` appended.'
    for alt in alternatives:
      test_cmd = [*alt, *test_postfix]
      try: await self.do_cmd(test_cmd, silent=True)
      except ProcessError:
        self.logger.note('+', f"{args_to_shell_command(test_cmd)} didn't work; will try something else...")
        continue
      return list(alt)
    raise ProcessError(f"couldn't figure out how to run {name}!")

  async def figure_shell_command(self) -> List[str]:
    'Detect a working shell once; concurrent and later callers share the result.'
    if self._shell_cmd is None:
      self._shell_cmd = ensure_future(self.find_working_program(shell_alternatives, ['exit 0'], name='shell'))
    return list(await self._shell_cmd)

  def figure_python_command(self) -> List[str]:
    return [sys.executable]

  async def python(self, args:Sequence[str], silent:bool=False, cwd:Optional[str]=None, on_nz:str='error') -> int:
    return await self.do_cmd([*self.figure_python_command(), *args], silent=silent, cwd=cwd, on_nz=on_nz)

  async def pip(self, args:Sequence[str], silent:bool=False, cwd:Optional[str]=None, on_nz:str='error') -> int:
    return await self.do_cmd([*self.figure_python_command(), '-m', 'pip', *args], silent=silent, cwd=cwd, on_nz=on_nz)
