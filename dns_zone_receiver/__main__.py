from dns_zone_receiver.service import main

main()
