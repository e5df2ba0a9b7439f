import sys

from leader_inspector.cli import main

sys.exit(main())
