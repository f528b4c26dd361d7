# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

'''
Rebuilder's core build algorithm.
'''

from asyncio import Future, gather, get_running_loop
from collections import defaultdict
from inspect import isawaitable
from typing import DefaultDict, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from . import fs
from .ctx import (ActionError, AnyTarget, BuildContext, BuildError, CircularDependency, Dpdt, PathTarget, StatError, Target,
  TargetNotFound)
from .logging import Logger
from .registry import TargetMap, TargetRegistry
from .subproc import Cmd, ExternalProcessRunner


Mtime = Optional[float]


def out_of_date_reason(target:str, target_mtime:Mtime, prereq_mtimes:Iterable[Tuple[str, Mtime]]) -> Optional[str]:
  '''
  Return a description of why `target` must be rebuilt, or None if it is up to date.
  A target is up to date iff it exists and no prerequisite is missing or strictly newer.
  '''
  if target_mtime is None:
    return 'target does not exist'
  for name, mtime in prereq_mtimes:
    if mtime is None:
      return f'prerequisite does not exist: {name}'
    if mtime > target_mtime:
      return f'prerequisite is newer: {name} ({mtime} > {target_mtime})'
  return None


class Builder:
  '''
  Builds targets from a registry of rules, rebuilding only those that are stale.
  Each target is built at most once per run; `build_tasks` maps target names to their (possibly pending) outcomes.
  '''

  def __init__(self, targets:Optional[Mapping[str, Target]]=None, global_prereqs:Sequence[str]=(),
   generated_targets=None, logger:Optional[Logger]=None) -> None:
    self.targets:TargetMap = dict(targets or {})
    # Things to always consider prerequisites, such as the build script itself.
    self.global_prereqs:List[str] = list(global_prereqs)
    self._generated_targets = generated_targets
    self.epr = ExternalProcessRunner()
    self.logger = logger or Logger()
    self.registry = TargetRegistry(self.targets, fetch_generated=self.fetch_generated_targets)
    self.build_tasks:Dict[str, Future] = {}
    self.waits:DefaultDict[str, Set[str]] = defaultdict(set) # requester -> requested, for cycle detection.

  @property
  def logger(self) -> Logger:
    return self._logger

  @logger.setter
  def logger(self, logger:Logger) -> None:
    self._logger = logger
    self.epr.logger = logger

  def reset(self) -> None:
    'Forget all build outcomes, so that the next build starts a fresh run.'
    self.build_tasks.clear()
    self.waits.clear()

  # Registry.

  async def fetch_generated_targets(self) -> Mapping[str, Target]:
    'Override, or pass `generated_targets` to the constructor, to supply rules computed at build time.'
    if self._generated_targets is None: return {}
    return await self._generated_targets()

  async def fetch_all_targets(self) -> TargetMap:
    return await self.registry.fetch_all_targets()

  async def fetch_target(self, name:str) -> AnyTarget:
    return await self.registry.fetch_target(name)

  def prereq_names_for(self, target:Target, name:str) -> Tuple[str, ...]:
    names = list(target.prereqs)
    if target.get_prereqs is not None:
      names.extend(target.get_prereqs())
    names.extend(self.global_prereqs)
    return tuple(n for n in dict.fromkeys(names) if n != name)

  # Process and file helpers for build actions.

  async def touch(self, path:str) -> None:
    self.logger.note(path, 'touching.')
    await fs.touch(path)

  async def do_cmd(self, args:Cmd, silent:bool=False, cwd:Optional[str]=None, on_nz:str='error') -> int:
    return await self.epr.do_cmd(args, silent=silent, cwd=cwd, on_nz=on_nz)

  async def python(self, args:Sequence[str], silent:bool=False, cwd:Optional[str]=None, on_nz:str='error') -> int:
    return await self.epr.python(args, silent=silent, cwd=cwd, on_nz=on_nz)

  async def pip(self, args:Sequence[str], silent:bool=False, cwd:Optional[str]=None, on_nz:str='error') -> int:
    return await self.epr.pip(args, silent=silent, cwd=cwd, on_nz=on_nz)

  # Build.

  def build(self, target:str, dpdt:Optional[Dpdt]=None) -> Future:
    '''
    Return the outcome of building `target`, starting the build if this run has not already done so.
    Not a coroutine function:
    the table entry must exist before any other request for `target` can be made.
    Must be called from within the running event loop; otherwise raises RuntimeError.
    '''
    loop = get_running_loop()
    if dpdt is None: dpdt = Dpdt.top('build')
    requester = dpdt.requester
    if requester is not None:
      cycle = self.wait_cycle(requester, target)
      if cycle:
        raise CircularDependency(target, 'target has circular dependency: ', ' > '.join(cycle), trace=dpdt.trace(target))
      self.waits[requester].add(target)
    try: return self.build_tasks[target]
    except KeyError: pass
    task = self.build_tasks[target] = loop.create_task(self.update_target(target, dpdt))
    return task

  def wait_cycle(self, requester:str, target:str) -> Optional[List[str]]:
    '''
    If `target` already waits on `requester` (directly or transitively), return the cycle that a new edge would close,
    starting and ending with `requester`; otherwise None.
    '''
    if target == requester: return [requester, target]
    path = [target]
    visited = {target}
    def search(t:str) -> bool:
      for dep in self.waits.get(t, ()):
        path.append(dep)
        if dep == requester: return True
        if dep not in visited:
          visited.add(dep)
          if search(dep): return True
        path.pop()
      return False
    if search(target): return [requester, *path]
    return None

  async def update_target(self, target:str, dpdt:Dpdt) -> None:
    rule = await self.fetch_target(target)
    if isinstance(rule, PathTarget):
      if await fs.path_exists(rule.path):
        self.logger.dbg(target, 'exists but has no build rule; assuming up to date.')
        return
      raise TargetNotFound(target, "does not exist and I don't know how to build it.", trace=dpdt.trace(target))
    await self.build_target(rule, target, dpdt)

  async def build_target(self, rule:Target, target:str, dpdt:Dpdt) -> None:
    own_dpdt = dpdt.sub(kind='target', target=target)
    prereq_names = self.prereq_names_for(rule, target)
    if prereq_names:
      self.logger.dbg(target, f"{len(prereq_names)} prerequisite{'' if len(prereq_names) == 1 else 's'}: ", ', '.join(prereq_names))
    else:
      self.logger.dbg(target, 'no prerequisites.')

    target_mtime, prereq_mtimes = await gather(
      self.mtime_r(target, dpdt),
      gather(*(self.build_then_mtime(p, own_dpdt) for p in prereq_names)))

    reason = out_of_date_reason(target, target_mtime, prereq_mtimes)
    if reason is None:
      self.logger.dbg(target, 'up to date.')
      return
    self.logger.dbg(target, f'out of date: {reason}.')

    if rule.invoke is None:
      self.logger.dbg(target, 'no build action; assuming up to date.')
      return

    self.logger.note(target, 'building...')
    ctx = BuildContext(builder=self, prereq_names=prereq_names, target_name=target, dpdt=own_dpdt)
    try:
      res = rule.invoke(ctx)
      if isawaitable(res): await res
    except Exception as e:
      trace = dpdt.trace(target)
      self.logger.error(target, 'error trace: ', ' > '.join(trace))
      if not rule.keep_on_failure:
        self.logger.error(target, 'removing.')
        await fs.remove_r(target)
      if isinstance(e, BuildError): raise
      raise ActionError(target, f'build action failed: {e}', trace=trace) from e

    if rule.is_dir:
      try: await self.touch(target)
      except FileNotFoundError as e:
        raise BuildError(target, 'directory target was not created by its build action.', trace=dpdt.trace(target)) from e
    self.logger.note(target, 'build complete.')

  async def build_then_mtime(self, target:str, dpdt:Dpdt) -> Tuple[str, Mtime]:
    await self.build(target, dpdt)
    return target, await self.mtime_r(target, dpdt)

  async def mtime_r(self, target:str, dpdt:Dpdt) -> Mtime:
    try: return await fs.mtime_r(target)
    except OSError as e:
      raise StatError(target, f'failed to stat: {e}', trace=dpdt.trace(target)) from e

  async def build_all(self, targets:Sequence[str]) -> List[BuildError]:
    '''
    Build each of `targets` concurrently and wait for every build started along the way to finish.
    Returns the failures of the requested targets; an empty list means success.
    '''
    tops = [self.build(t, Dpdt.top(f'argv[{i}]')) for i, t in enumerate(targets)]
    results = await gather(*tops, return_exceptions=True)
    # Sibling builds of a failed prerequisite are not cancelled; let them settle.
    while True:
      pending = [t for t in self.build_tasks.values() if not t.done()]
      if not pending: break
      await gather(*pending, return_exceptions=True)
    errors:List[BuildError] = []
    for i, (target, res) in enumerate(zip(targets, results)):
      if res is None: continue
      if isinstance(res, BuildError):
        if res not in errors: errors.append(res)
      elif isinstance(res, Exception): # e.g. raised by a `get_prereqs` function or a generated targets fetch.
        e = BuildError(target, f'{type(res).__name__}: {res}', trace=(f'argv[{i}]', target))
        e.__cause__ = res
        errors.append(e)
      else:
        raise res
    return errors

  def main(self, argv:Optional[Sequence[str]]=None) -> None:
    'Run the command line driver for this builder and exit with its status.'
    from .main import run_and_exit
    run_and_exit(self, argv)
