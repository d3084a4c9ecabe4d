"""Allow running as: python -m tsfeatkit <data_path>"""

from tsfeatkit.run import main

main()
