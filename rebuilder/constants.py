# Dedicated to the public domain under CC0: https://creativecommons.org/publicdomain/zero/1.0/.

'''
Rebuilder constants.
'''


default_target = 'default'
default_build_script = 'build.py'

VERBOSITY_SILENT   = 0
VERBOSITY_ERRORS   = 1
VERBOSITY_WARNINGS = 2
VERBOSITY_INFO     = 3
VERBOSITY_DEBUG    = 4

default_verbosity = VERBOSITY_WARNINGS
