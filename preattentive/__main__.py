from preattentive.experiment import main

main()
