from chrooter.cli import main

main()
