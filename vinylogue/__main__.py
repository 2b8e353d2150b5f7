import sys

from vinylogue.infrastructure.cli.app import main

sys.exit(main())
