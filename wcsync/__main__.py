from wcsync.cli.app import main

main()
