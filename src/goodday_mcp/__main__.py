from goodday_mcp.cli import main

main()
