"""python -m methoddocs"""

from methoddocs.cli.main import main

if __name__ == "__main__":
    main()
