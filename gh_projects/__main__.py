"""Entry point: python -m gh_projects"""

from gh_projects.cli import main

if __name__ == "__main__":
    main()
