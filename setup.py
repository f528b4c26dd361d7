# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.


import sys
if sys.version_info < (3, 9): exit('error: rebuilder requires Python3.9 or later. Make sure to install with `pip3` or `pip3.X`.')

from setuptools import setup


setup(
  name='rebuilder',
  version='0.1.0',
  description='a minimal incremental build tool driven by file modification times.',
  python_requires='>=3.9',
  packages=['rebuilder'],
  install_requires=['pithy'],
  extras_require={'test': ['pytest']},
  entry_points = {'console_scripts': [
    'rebuilder=rebuilder.main:main',
  ]},
)
