from conscanner.cli import main

main()
