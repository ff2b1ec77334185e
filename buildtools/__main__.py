from buildtools.pipeline import main

main()
