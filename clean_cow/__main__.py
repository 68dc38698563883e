"""Package entry point for ``python -m clean_cow``.

WHY: Lets operators run the cleaner as ``python -m clean_cow file.mkv``
without installing the console script.

HOW: Delegates straight to the CLI's main().
"""

from clean_cow.cli import main

if __name__ == "__main__":
    main()
