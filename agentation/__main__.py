import sys

from agentation.cli import main

sys.exit(main())
