# SPDX-License-Identifier: Apache-2.0
from facetrace.cli import app

app(prog_name="facetrace")
