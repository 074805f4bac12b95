from rtspview.cli import main

main()
