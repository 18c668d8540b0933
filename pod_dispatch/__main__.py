from pod_dispatch.app import main

main()
