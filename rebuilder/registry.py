# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

from asyncio import Future, ensure_future
from typing import Awaitable, Callable, Dict, Mapping, Optional

from .ctx import AnyTarget, PathTarget, Target


TargetMap = Dict[str, Target]
GeneratedTargetsFn = Callable[[], Awaitable[Mapping[str, Target]]]


async def no_generated_targets() -> TargetMap:
  return {}


class TargetRegistry:
  '''
  The statically configured targets, merged with the targets produced by `fetch_generated`.
  `fetch_generated` runs at most once; its result is cached for the lifetime of the registry.
  '''

  def __init__(self, targets:Optional[TargetMap]=None, fetch_generated:GeneratedTargetsFn=no_generated_targets) \
   -> None:
    # Not copied: the owner may add targets until the first fetch.
    self.targets:TargetMap = {} if targets is None else targets
    self.fetch_generated = fetch_generated
    self._all_targets:Optional[Future] = None

  async def _merge_all(self) -> TargetMap:
    all_targets = dict(self.targets)
    generated = await self.fetch_generated()
    all_targets.update(generated)
    return all_targets

  async def fetch_all_targets(self) -> TargetMap:
    if self._all_targets is None:
      self._all_targets = ensure_future(self._merge_all())
    return await self._all_targets

  async def fetch_target(self, name:str) -> AnyTarget:
    all_targets = await self.fetch_all_targets()
    try: return all_targets[name]
    except KeyError: return PathTarget(path=name)
