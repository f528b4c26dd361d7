# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

'''
Rebuilder command line driver.
'''

import asyncio
import sys
from argparse import ArgumentParser, Namespace
from importlib.util import module_from_spec, spec_from_file_location
from typing import List, Optional, Sequence

from pithy.io import errL, outL

from .builder import Builder
from .constants import default_build_script, default_target, default_verbosity
from .ctx import BuildError
from .logging import Logger, error_msg


def make_parser(build_script:bool=False) -> ArgumentParser:
  parser = ArgumentParser(prog='rebuilder', description='build targets whose prerequisites have changed.')
  if build_script:
    parser.add_argument('--build-script', default=default_build_script,
      help=f"python file defining `builder` or `targets`; defaults to '{default_build_script}'.")
  op = parser.add_mutually_exclusive_group()
  op.add_argument('--list-targets', dest='operation', action='store_const', const='list-targets', default='build',
    help='print the names of all targets.')
  op.add_argument('--describe-targets', dest='operation', action='store_const', const='describe-targets',
    help='print the names of all targets with their descriptions.')
  parser.add_argument('-v', dest='verbose', action='count', default=0, help='log more details to stderr; may be repeated.')
  parser.add_argument('targets', nargs='*', help=f"targets to build; defaults to '{default_target}'.")
  return parser


def parse_args(argv:Sequence[str], build_script:bool=False) -> Namespace:
  parser = make_parser(build_script=build_script)
  args = parser.parse_args(argv)
  for i, target in enumerate(args.targets):
    if not target: parser.error(f'zero-length target name at position {i}.')
  # Tab completion on Windows produces back-slashes.
  args.targets = [t.replace('\\', '/') for t in args.targets] or [default_target]
  return args


async def run(builder:Builder, args:Namespace) -> int:
  'Perform the operation selected by `args`; return the exit status.'
  if args.verbose:
    builder.logger = Logger(max(builder.logger.verbosity, default_verbosity) + args.verbose)

  if args.operation == 'list-targets':
    for name in await builder.fetch_all_targets():
      outL(name)
    return 0

  if args.operation == 'describe-targets':
    for name, target in (await builder.fetch_all_targets()).items():
      if target.description:
        outL(name, ' ; ', target.description.replace('\n', '\n  '))
      else:
        outL(name)
    return 0

  assert args.operation == 'build', args.operation
  errors = await builder.build_all(args.targets)
  if not errors:
    builder.logger.note('rebuilder', 'build complete.')
    return 0
  report_errors(errors)
  return 1


def report_errors(errors:List[BuildError]) -> None:
  for e in errors:
    errL(e)
    if e.trace: errL('  trace: ', e.trace_str)
  errL('rebuilder: build failed.')


def run_and_exit(builder:Builder, argv:Optional[Sequence[str]]=None) -> None:
  args = parse_args(sys.argv[1:] if argv is None else argv)
  exit(asyncio.run(run(builder, args)))


def load_build_script(path:str) -> Builder:
  '''
  Load the build script at `path`.
  The script either defines `builder`, a `Builder`, or `targets`, a mapping of names to `Target`
  (optionally with a `global_prereqs` list).
  The script itself is made a global prerequisite, so that changing it invalidates every target.
  '''
  spec = spec_from_file_location('rebuilder_build_script', path)
  if spec is None or spec.loader is None:
    exit(error_msg(path, 'cannot load build script.'))
  module = module_from_spec(spec)
  try: spec.loader.exec_module(module)
  except FileNotFoundError:
    exit(error_msg(path, 'build script not found.'))

  builder = getattr(module, 'builder', None)
  if builder is None:
    targets = getattr(module, 'targets', None)
    if targets is None:
      exit(error_msg(path, 'build script defines neither `builder` nor `targets`.'))
    builder = Builder(targets=targets, global_prereqs=getattr(module, 'global_prereqs', ()))
  elif not isinstance(builder, Builder):
    exit(error_msg(path, f'`builder` is not a rebuilder.Builder: {builder!r}'))
  if path not in builder.global_prereqs:
    builder.global_prereqs.append(path)
  return builder


def main(argv:Optional[Sequence[str]]=None) -> None:
  args = parse_args(sys.argv[1:] if argv is None else argv, build_script=True)
  builder = load_build_script(args.build_script)
  exit(asyncio.run(run(builder, args)))
