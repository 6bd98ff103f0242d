# AGPL-3.0 License

from no_dpts.cli import main

main()
