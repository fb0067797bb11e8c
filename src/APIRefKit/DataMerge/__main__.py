"""Allow ``python -m APIRefKit.DataMerge``."""

from .cli import main

if __name__ == "__main__":
    main()
