#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Generate machine alarm, data logger and recipe PDF reports.
"""

# local repo modules
import machine_reports.cli


if __name__ == "__main__":
	machine_reports.cli.main()
