from finhub.serve import main

main()
