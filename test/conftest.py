# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

import os

import pytest


@pytest.fixture
def in_tmp(tmp_path, monkeypatch):
  'Run the test inside a fresh temporary directory, so that target names are relative paths.'
  monkeypatch.chdir(tmp_path)
  return tmp_path


def set_mtime(path, t:float) -> None:
  os.utime(path, (t, t))


def write(path, text:str='', mtime=None) -> None:
  d = os.path.dirname(path)
  if d: os.makedirs(d, exist_ok=True)
  with open(path, 'w') as f: f.write(text)
  if mtime is not None: set_mtime(path, mtime)
