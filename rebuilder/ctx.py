# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

from .logging import error_msg

if TYPE_CHECKING:
  from .builder import Builder


class BuildError(Exception):
  def __init__(self, target:str, *msg:Any, trace:Sequence[str]=()) -> None:
    super().__init__(target, *msg)
    self.target = target
    self.msg = msg
    self.trace = tuple(trace)

  def __str__(self) -> str:
    return error_msg(*self.args)

  @property
  def trace_str(self) -> str:
    return ' > '.join(self.trace)


class TargetNotFound(BuildError): pass

class StatError(BuildError): pass

class ActionError(BuildError): pass

class CircularDependency(BuildError): pass


class Dpdt(NamedTuple):
  '''
  Dependent target tracking.
  Each recursive build creates a `Dpdt`, forming a linked list of targets back to the command line.
  `kind` is 'top' for the root of the chain (a label such as 'argv[0]'), and 'target' for each target being built.
  '''
  kind:str
  target:str
  parent:Optional['Dpdt']

  def __str__(self) -> str:
    return f'Dpdt: {self.target} ({self.kind})'

  @classmethod
  def top(cls, label:str) -> 'Dpdt':
    return cls(kind='top', target=label, parent=None)

  def sub(self, kind:str, target:str) -> 'Dpdt':
    return Dpdt(kind=kind, target=target, parent=self)

  @property
  def requester(self) -> Optional[str]:
    'The target on whose behalf the next build is requested, or None for a top-level request.'
    return None if self.kind == 'top' else self.target

  def targets(self) -> Iterator[str]:
    'Yield the chain from the current target back to the root.'
    current:Optional[Dpdt] = self
    while current is not None:
      yield current.target
      current = current.parent

  def trace(self, *tail:str) -> List[str]:
    'The chain from the root to the current target, followed by `tail`.'
    return [*reversed(list(self.targets())), *tail]


class PathTarget(NamedTuple):
  'A target name with no registered rule; it names a plain filesystem path.'
  path:str


class BuildContext(NamedTuple):
  builder:'Builder'
  prereq_names:Tuple[str, ...]
  target_name:str
  dpdt:Dpdt

  def build(self, target:str) -> Awaitable[None]:
    'Build `target` from within the running action, on behalf of this context\'s target.'
    return self.builder.build(target, dpdt=self.dpdt)


Action = Callable[[BuildContext], Any]


@dataclass(frozen=True)
class Target:
  description:Optional[str] = None
  prereqs:Tuple[str, ...] = ()
  get_prereqs:Optional[Callable[[], Iterable[str]]] = None
  invoke:Optional[Action] = None
  is_dir:bool = False # The artifact is a directory; its mtime is refreshed after a successful build.
  keep_on_failure:bool = False

  def __post_init__(self) -> None:
    if isinstance(self.prereqs, str):
      raise TypeError(f'Target prereqs must be a sequence of names, not a string: {self.prereqs!r}')
    object.__setattr__(self, 'prereqs', tuple(self.prereqs))


AnyTarget = Union[Target, PathTarget]
