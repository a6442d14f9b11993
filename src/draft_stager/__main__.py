from draft_stager import main

main()
