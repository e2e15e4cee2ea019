"""L1 batch synchronisation, committee tracking, start-block search and reorg detection."""