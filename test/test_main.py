# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

import os
from asyncio import run as arun

import pytest

import rebuilder.main as rm
from conftest import write
from rebuilder import NULL_LOGGER, Builder, Logger, Target, fs
from rebuilder.constants import VERBOSITY_INFO, VERBOSITY_SILENT


@pytest.fixture
def lines(monkeypatch):
  'Capture the lines written by the driver to stdout and stderr.'
  out = []
  err = []
  monkeypatch.setattr(rm, 'outL', lambda *items: out.append(''.join(str(i) for i in items)))
  monkeypatch.setattr(rm, 'errL', lambda *items: err.append(''.join(str(i) for i in items)))
  return out, err


async def write_target(ctx):
  await fs.write_file(ctx.target_name, ctx.target_name)


async def fail(ctx):
  raise RuntimeError('broken')


def sample_builder() -> Builder:
  return Builder({
    'default': Target(description='build everything', prereqs=['a.txt']),
    'a.txt': Target(invoke=write_target),
    'bad.txt': Target(description='always fails\nwith two lines', invoke=fail),
  }, logger=NULL_LOGGER)


# Arguments.

def test_parse_args_defaults():
  args = rm.parse_args([])
  assert args.targets == ['default']
  assert args.operation == 'build'
  assert args.verbose == 0
  assert not hasattr(args, 'build_script')
  assert rm.parse_args([], build_script=True).build_script == 'build.py'


def test_parse_args_targets():
  args = rm.parse_args(['-v', '-v', 'out\\sub\\x.txt', 'y'])
  assert args.targets == ['out/sub/x.txt', 'y']
  assert args.verbose == 2


def test_parse_args_operations():
  assert rm.parse_args(['--list-targets']).operation == 'list-targets'
  assert rm.parse_args(['--describe-targets']).operation == 'describe-targets'


@pytest.mark.parametrize('argv', [
  ['--no-such-flag'],
  ['--list-targets', '--describe-targets'],
  [''],
])
def test_parse_args_errors(argv):
  with pytest.raises(SystemExit) as info:
    rm.parse_args(argv)
  assert info.value.code == 2


# Operations.

def test_list_targets(lines):
  out, _ = lines
  args = rm.parse_args(['--list-targets'])
  assert arun(rm.run(sample_builder(), args)) == 0
  assert out == ['default', 'a.txt', 'bad.txt']


def test_describe_targets(lines):
  out, _ = lines
  args = rm.parse_args(['--describe-targets'])
  assert arun(rm.run(sample_builder(), args)) == 0
  assert out == ['default ; build everything', 'a.txt', 'bad.txt ; always fails\n  with two lines']


def test_build_default(in_tmp, lines):
  _, err = lines
  assert arun(rm.run(sample_builder(), rm.parse_args([]))) == 0
  assert open('a.txt').read() == 'a.txt'
  assert err == []


def test_build_failure_reported(in_tmp, lines):
  _, err = lines
  assert arun(rm.run(sample_builder(), rm.parse_args(['a.txt', 'bad.txt']))) == 1
  assert os.path.exists('a.txt')
  assert err[0].startswith('rebuilder error: bad.txt: build action failed: broken')
  assert err[1:] == ['  trace: argv[1] > bad.txt', 'rebuilder: build failed.']


def test_build_missing_target_reported(in_tmp, lines):
  _, err = lines
  assert arun(rm.run(sample_builder(), rm.parse_args(['nope']))) == 1
  assert "does not exist and I don't know how to build it." in err[0]


def test_verbosity_raised(in_tmp, lines):
  builder = sample_builder()
  builder.logger = Logger(verbosity=VERBOSITY_SILENT)
  args = rm.parse_args(['-v', '--list-targets'])
  arun(rm.run(builder, args))
  assert builder.logger.verbosity == VERBOSITY_INFO
  assert builder.epr.logger is builder.logger


# Build scripts.

targets_script = '''
from rebuilder import Target, fs

async def write_out(ctx):
  await fs.write_file(ctx.target_name, 'out')

targets = {
  'default': Target(prereqs=['out.txt']),
  'out.txt': Target(description='the output', invoke=write_out),
}
global_prereqs = ['config.txt']
'''

builder_script = '''
from rebuilder import Builder, NULL_LOGGER, Target

builder = Builder({'phony': Target()}, logger=NULL_LOGGER)
'''


def test_load_targets_script(in_tmp):
  write('build.py', targets_script)
  builder = rm.load_build_script('build.py')
  assert sorted(builder.targets) == ['default', 'out.txt']
  assert builder.global_prereqs == ['config.txt', 'build.py']


def test_load_builder_script(in_tmp):
  write('rules.py', builder_script)
  builder = rm.load_build_script('rules.py')
  assert isinstance(builder, Builder)
  assert list(builder.targets) == ['phony']
  assert builder.global_prereqs == ['rules.py']


@pytest.mark.parametrize('text', [None, 'x = 1\n', 'builder = 1\n'])
def test_load_bad_script(in_tmp, text):
  if text is not None: write('build.py', text)
  with pytest.raises(SystemExit) as info:
    rm.load_build_script('build.py')
  assert 'build.py' in str(info.value.code)


def test_main(in_tmp, lines):
  write('build.py', targets_script)
  write('config.txt')
  with pytest.raises(SystemExit) as info:
    rm.main([])
  assert info.value.code == 0
  assert open('out.txt').read() == 'out'


def test_main_build_script_option(in_tmp, lines):
  out, _ = lines
  write('rules/targets.py', targets_script)
  with pytest.raises(SystemExit) as info:
    rm.main(['--build-script', 'rules/targets.py', '--describe-targets'])
  assert info.value.code == 0
  assert out == ['default', 'out.txt ; the output']


def test_builder_main(in_tmp, lines):
  with pytest.raises(SystemExit) as info:
    sample_builder().main(['bad.txt'])
  assert info.value.code == 1
