from saml2alibabacloud.cli import main

main()
