# Logged event codes
INDEX_SERVED = 'INDEX_SERVED'
LINK_RESOLVED = 'LINK_RESOLVED'
LINK_BLACKLISTED = 'LINK_BLACKLISTED'
RESOLUTION_FAILED = 'RESOLUTION_FAILED'
CONFIGURATION_FAILED = 'CONFIGURATION_FAILED'
PROVIDERS_LISTED = 'PROVIDERS_LISTED'
