from treesync.cli import main

main()
