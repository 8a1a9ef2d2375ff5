# SPDX-License-Identifier: BSD-2
