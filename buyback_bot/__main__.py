from buyback_bot.core.runner import main

main()
