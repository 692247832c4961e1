"""Allow running as: python -m regulatory_intake"""

import sys

from regulatory_intake.main import main

if __name__ == "__main__":
    sys.exit(main())
