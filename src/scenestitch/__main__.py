import sys

from scenestitch.cli import main

sys.exit(main())
