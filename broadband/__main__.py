from broadband.cli import main

main()
