import sys

from sealbatch.cli import main

sys.exit(main())
