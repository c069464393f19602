from babelpost.main import main

main()
