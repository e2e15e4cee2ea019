"""RPC endpoint handlers for the datacom, status and sync namespaces."""