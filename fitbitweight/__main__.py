#!/usr/bin/env python3

import sys

from fitbitweight.core import main

if __name__ == "__main__":
    sys.exit(main())
