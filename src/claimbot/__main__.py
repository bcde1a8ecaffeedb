import sys

from claimbot.cli import main

sys.exit(main())
