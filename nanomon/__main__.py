from nanomon.cli import main

main()
