import sys

from cognigen.cli import main

sys.exit(main())
