"""
Integration tests for the email gateway.

These tests run the Lambda handlers against moto-mocked SES and S3 to
check complete inbound and outbound flows.
"""
