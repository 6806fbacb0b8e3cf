"""Services that connect the aggregation core to the storage adapters."""
