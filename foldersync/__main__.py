from foldersync.cli import main

main()
