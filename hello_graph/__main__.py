# hello_graph/__main__.py
# SPDX-License-Identifier: Apache-2.0
from hello_graph.cli import main

raise SystemExit(main())
