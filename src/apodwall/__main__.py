"""
__main__.py

This file adds support for running apodwall as a python module instead of invoking the "apodwall"
command line entrypoint, e.g.

    $ python -m apodwall apod
"""


from apodwall.cli import main


if __name__ == "__main__":
    main()
