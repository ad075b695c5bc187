from artisanbridge.daemon import main

main()
