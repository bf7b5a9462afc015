# SPDX-License-Identifier: Apache-2.0

"""
Middleware package for request processing.

This package contains the authentication decorator and the error handlers
that map relief errors to problem responses.
"""
