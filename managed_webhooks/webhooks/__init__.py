"""The individual admission webhooks, one module per webhook."""