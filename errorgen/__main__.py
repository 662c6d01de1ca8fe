import sys

from errorgen.compiler.cli import main

sys.exit(main())
