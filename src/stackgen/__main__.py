from stackgen.pipeline import main

main()
