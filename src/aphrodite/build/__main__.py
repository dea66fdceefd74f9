from aphrodite.build.main import main

main()
