import sys

from buildtrace.cli import main

sys.exit(main())
