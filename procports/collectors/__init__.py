from .procfs import build_listen_map, find_pids, get_sockets, read_cmdline, read_tcp_table
