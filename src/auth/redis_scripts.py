"""
Redis Lua scripts for refresh-token bookkeeping.

Scripts run atomically on the server, so a rotation racing a logout on the
same token can never leave both the old and the new token registered.
"""

# Removes the old token key and registers the new one in a single step.
# Returns 'INVALID' (and registers nothing) when the old token is unknown.
REPLACE_REFRESH_TOKEN_SCRIPT = """
local old_key = KEYS[1]
local new_key = KEYS[2]
local value = ARGV[1]
local ttl_seconds = ARGV[2]

if redis.call('DEL', old_key) == 0 then
    return 'INVALID'
end

redis.call('SET', new_key, value, 'EX', ttl_seconds)

return 'OK'
"""
