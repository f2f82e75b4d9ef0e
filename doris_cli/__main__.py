#!/usr/bin/env python
# -*- coding: utf-8 -*-
from doris_cli.cli import main

main(prog_name="doris-cli")
