from kvdb.bootstrap.entrypoints import main

main()
