from runbook_templates.cli.main import main

main()
