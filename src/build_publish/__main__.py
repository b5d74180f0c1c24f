from build_publish.cli.app import main

main()
