# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

'''
Asynchronous file system utilities.
Each coroutine runs its blocking work in a worker thread via `asyncio.to_thread`,
so that the build loop can fan out over many paths at once.
'''

import os
import shutil
import stat as _stat
from asyncio import gather, to_thread
from inspect import isawaitable
from os import DirEntry
from time import time as now
from typing import Any, Callable, Iterable, List, Optional, Union

from pithy.path import path_dir, path_join


Path = str
PathOrPaths = Union[Path, Iterable[Path]]


class NotFileOrDir(OSError):
  'Raised by `mtime_r` for entities that are neither regular files nor directories.'


def _mtime_r(path:Path) -> Optional[float]:
  try: st = os.stat(path)
  except FileNotFoundError: return None
  if _stat.S_ISREG(st.st_mode): return st.st_mtime
  if not _stat.S_ISDIR(st.st_mode):
    raise NotFileOrDir(f'{path} is neither a regular file nor a directory')
  latest = st.st_mtime
  with os.scandir(path) as it:
    entries:List[DirEntry] = list(it)
  for entry in entries:
    m = _mtime_r(entry.path)
    if m is not None and m > latest:
      latest = m
  return latest


async def mtime_r(path:Path) -> Optional[float]:
  '''
  The most recent modification time of `path`, searched recursively for directories.
  Returns None if `path` does not exist (a dangling symlink counts as nonexistent).
  '''
  return await to_thread(_mtime_r, path)


async def stat(path:Path) -> os.stat_result:
  return await to_thread(os.stat, path)


async def path_exists(path:Path) -> bool:
  return await to_thread(os.path.exists, path)


async def list_dir(path:Path) -> List[str]:
  return await to_thread(os.listdir, path)


async def walk_dir(path:Path, file_fn:Callable[[Path], Any]) -> None:
  '''
  Recursively walk a directory, applying `file_fn` to every non-directory within it.
  Completes after all awaitable results of `file_fn` have completed.
  '''
  names = await list_dir(path)
  async def visit(sub:Path) -> None:
    if await to_thread(os.path.isdir, sub):
      await walk_dir(sub, file_fn)
    else:
      res = file_fn(sub)
      if isawaitable(res): await res
  await gather(*(visit(path_join(path, n)) for n in names))


def _read(path:Path, mode:str, encoding:Optional[str]) -> Any:
  with open(path, mode, encoding=encoding) as f:
    return f.read()

async def read_text(path:Path, encoding:str='utf-8') -> str:
  return await to_thread(_read, path, 'r', encoding)

async def read_bytes(path:Path) -> bytes:
  return await to_thread(_read, path, 'rb', None)


def _write(path:Path, data:Union[str, bytes]) -> None:
  if isinstance(data, str):
    with open(path, 'w', encoding='utf-8') as f: f.write(data)
  else:
    with open(path, 'wb') as f: f.write(data)

async def write_file(path:Path, data:Union[str, bytes]) -> Path:
  await to_thread(_write, path, data)
  return path


async def rename(path:Path, dst:Path) -> Path:
  await to_thread(os.rename, path, dst)
  return dst


async def link(path:Path, dst:Path) -> Path:
  'Create a hard link at `dst` to `path`.'
  await to_thread(os.link, path, dst)
  return dst


async def unlink(path:Path) -> None:
  await to_thread(os.unlink, path)


def _remove_r(path:Path) -> None:
  try: st = os.lstat(path)
  except FileNotFoundError: return
  if _stat.S_ISDIR(st.st_mode):
    shutil.rmtree(path)
  else:
    os.unlink(path)

async def remove_r(path:PathOrPaths) -> None:
  'Remove a file or directory tree, or each of a collection of them. Missing paths are ignored.'
  if isinstance(path, str):
    await to_thread(_remove_r, path)
  else:
    await gather(*(remove_r(p) for p in path))


async def make_dirs(path:Path) -> Path:
  'Create `path` and any missing ancestors.'
  if path:
    await to_thread(os.makedirs, path, exist_ok=True)
  return path


async def make_parent_dirs(path:Path) -> None:
  await make_dirs(path_dir(path))


def _touch(path:Path) -> None:
  t = now()
  os.utime(path, (t, t))

async def touch(path:Path) -> None:
  'Set the access and modification times of an existing path to the current time.'
  await to_thread(_touch, path)


async def cp(src:Path, dst:Path) -> Path:
  await to_thread(shutil.copyfile, src, dst)
  return dst


async def cp_r(src:Path, dst:Path) -> None:
  'Copy a file or a directory tree; directory contents are copied concurrently.'
  if await to_thread(os.path.isdir, src):
    await to_thread(os.makedirs, dst, exist_ok=True)
    names = await list_dir(src)
    await gather(*(cp_r(path_join(src, n), path_join(dst, n)) for n in names))
  else:
    await cp(src, dst)


async def cp_r_replacing(src:Path, dst:Path) -> None:
  'Remove `dst` entirely, then copy `src` to it.'
  await remove_r(dst)
  await cp_r(src, dst)
