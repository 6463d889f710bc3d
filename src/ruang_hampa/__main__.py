from ruang_hampa.main import main

main()
